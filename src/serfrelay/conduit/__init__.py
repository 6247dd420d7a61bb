"""
The conduit package provides an abstraction of a bi-directional byte stream to an endpoint,
and the readable/writable capabilities used to move bytes through it.
Concrete implementations cover plain descriptors (such as stdin/stdout) and TCP sockets.
"""
