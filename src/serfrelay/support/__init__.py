"""
Small helpers shared by the connector and the relay.
"""
