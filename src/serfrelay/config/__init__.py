"""
A simple configuration helper built on top of ConfigObj that allows configuration files to be
layered - defaults / os-specific / user / local, with a schema to validate the types of the config data.

Used to configure global values in modules, such as the relay's buffer size and mode selector.
"""
