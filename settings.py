"""
A settings file defined in python code, to make usage simpler than parsing
a configuration file. A simple wrapper object is used over a base dictionary
so we can access keys via attributes rather than dict indexing.

The daemon lets most of these be overridden from the command line.
"""

class SettingsDict(dict):
    def __getattr__(self, attr):
        try:
            return dict.__getitem__(self, attr)
        except KeyError:
            raise AttributeError(attr)

    def __setattr__(self, attr, value):
        self[attr] = value

# Relay (peer protocol) settings
relay = SettingsDict({
    "host": "0.0.0.0",
    "port": 3000,
    # Largest datagram read in one go. Anything bigger is truncated by the OS.
    "max_packet_size": 8192,
})

# Observer (HTTP status) settings
observer = SettingsDict({
    "enabled": True,
    "host": "127.0.0.1",
    "port": 3080,
    "status_interval": 30000 # Log a session summary every 30s
})

# Operator console settings
console = SettingsDict({
    "enabled": True,
})
