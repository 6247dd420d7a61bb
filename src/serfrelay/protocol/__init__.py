"""
The byte-level protocol of a relay connection: the environment envelope and the pump that
moves raw bytes between descriptors.
"""
