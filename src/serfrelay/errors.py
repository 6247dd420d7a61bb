class RelayError(Exception):
    """ Base class for failures that end a relay run. """
