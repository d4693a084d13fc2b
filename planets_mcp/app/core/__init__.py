"""
Core infrastructure shared by the rest of the application:
configuration, logging setup and the protocol error taxonomy.
"""
