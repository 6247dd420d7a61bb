import logging
import os
import platform

from configobj import ConfigObj, ConfigObjError, Section, flatten_errors
from validate import Validator

logger = logging.getLogger(__name__)

# The default extension for configuration files
config_extension = '.cfg'


def config_flavor(name, flavor=None):
    """
    >>> config_flavor('relay', 'default')
    'relay.default'
    >>> config_flavor('relay')
    'relay'
    """
    return name if not flavor else name + '.' + flavor


def config_filename(name, directory):
    """
    Determines the location of a config file in the given directory.
    """
    return os.path.join(directory, name + config_extension)


def load_config_file_base(file, must_exist=True):
    """
    Loads a configuration file
    :param file:        The configuration file to load
    :param must_exist:  when True, the file must exist or an exception is thrown.
    :return: The ConfigObj instance for the file.
    """
    try:
        return ConfigObj(file, interpolation='Template', file_error=must_exist) \
            if must_exist or os.path.exists(file) else ConfigObj()
    except ConfigObjError as e:
        raise type(e)(str(e) + ' at ' + file)


def load_config_spec(file):
    """
    Loads a schema file. Check expressions contain commas, so values are not split into lists.
    A missing schema gives an empty spec, which accepts anything.
    """
    if not os.path.exists(file):
        return ConfigObj(_inspec=True)
    try:
        return ConfigObj(file, _inspec=True, file_error=True)
    except ConfigObjError as e:
        raise type(e)(str(e) + ' at ' + file)


def config_flavor_file(name, directory, subpart=None) -> ConfigObj:
    """
    Loads a specialization of a config file. The configuration file is expected to be named
    after the base, followed by a period and then the specialization, if the specialization is given,
    otherwise just the base name. A missing file gives an empty configuration.
    """
    return load_config_file_base(config_filename(config_flavor(name, subpart), directory), False)


def map_os_name(name):
    """
    >>> map_os_name('Windows')
    'windows'
    >>> map_os_name("Darwin")
    'osx'
    """
    name = name.lower()
    if name == 'darwin':
        name = 'osx'
    return name


def os_name():
    return map_os_name(platform.system())


def describe_errors(config, result):
    """
    >>> describe_errors(ConfigObj(), {'a': False})
    'a: missing'
    """
    problems = []
    for section_list, key, error in flatten_errors(config, result):
        path = '.'.join(section_list + [key] if key is not None else section_list)
        problems.append('%s: %s' % (path, error if error else 'missing'))
    return ', '.join(problems)


def load_config(name, directory, user_directory='~'):
    """
        Loads all the configuration files that relate to the given name.
        Configurations are merged in this order, later ones overriding earlier ones:
        - the default specialization
        - the platform specialization
        - the user override, from the user directory
        - the local configuration
        The merged configuration is then validated against the schema specialization,
        which converts values to their declared types and fills in defaults.
    :param directory: the location of the configuration files
    :param user_directory: the location of the user override
    :return: the validated ConfigObj
    :raises ConfigObjError: a file cannot be parsed or the merged configuration is invalid
    """
    default_config = config_flavor_file(name, directory, 'default')
    platform_config = config_flavor_file(name, directory, os_name())
    user_config = load_config_file_base(
        config_filename(name, os.path.expanduser(user_directory)), must_exist=False)
    local_config = config_flavor_file(name, directory)
    config = ConfigObj()
    config.merge(default_config)
    config.merge(platform_config)
    config.merge(user_config)
    config.merge(local_config)

    config.configspec = load_config_spec(config_filename(config_flavor(name, 'schema'), directory))
    result = config.validate(Validator(), preserve_errors=True)
    if result is not True:
        raise ConfigObjError("the config file %s failed validation: %s" % (name, describe_errors(config, result)))
    return config


def fetch_conf_path(conf: Section, path):
    """
    Retrieves the named configuration section
    :param conf:        The root configuration
    :param path:        An iterable that lists the names of the sections to descend through
    :return: The configuration section identified by the path, or None
    """
    for p in path:
        conf = conf.get(p, None)
        if not isinstance(conf, Section):
            return None
    return conf


def apply_conf(conf: Section, target):
    """
    Applies the scalar values contained in a configuration section to a target object,
    setting any attributes with the same name. Names the target does not have are ignored.
    """
    applied = []
    for k, v in conf.items():
        if k in conf.sections:
            continue
        if hasattr(target, k):
            setattr(target, k, v)
            applied.append(k)
    return applied


def apply_conf_path(conf: Section, name_parts, target):
    """
    Applies a configuration path to a given target object
    :param conf:        The root configuration object
    :param name_parts:  The path of the configuration to apply
    :param target:      The target object that receives the configured values
    :return: the names of the attributes that were set
    """
    conf = fetch_conf_path(conf, name_parts)
    return apply_conf(conf, target) if conf is not None else []


def configure_module(module, config_name=None, user_directory='~'):
    """
    Applies the configuration to the given module.
    The configuration files are named after the module and live beside its source file.
    The values are nested in sections that follow the module's fully qualified name,
    (x.y.z becomes [x] [[y]] [[[z]]]).
    """
    fqname = module.__name__
    if not config_name:
        config_name = fqname.split('.')[-1]
    conf = load_config(config_name, os.path.dirname(module.__file__), user_directory)
    applied = apply_conf_path(conf, fqname.split('.'), module)
    logger.debug("configured %s: %s", fqname, ', '.join(applied) or 'nothing')
    return applied
