"""Plugin configuration schema rendered by the host's configuration UI."""

from .config import DEFAULT_PORT, UNSET_ADDRESS, LineDelimiter
from .interfaces import list_broadcast_addresses


def destination_schema() -> dict:
    """JSON schema of a single destination entry."""
    return {
        'type': 'object',
        'properties': {
            'ipaddress': {
                'type': 'string',
                'title': 'IP Address (overrides broadcast address if entered)',
            },
            'broadcastAddress': {
                'type': 'string',
                'enum': [UNSET_ADDRESS] + sorted(list_broadcast_addresses()),
                'default': UNSET_ADDRESS,
            },
            'port': {
                'type': 'number',
                'title': 'Port',
                'default': DEFAULT_PORT,
            },
            'nmea0183': {
                'type': 'boolean',
                'title': 'Use server event nmea0183',
                'default': True,
            },
            'nmea0183out': {
                'type': 'boolean',
                'title': 'Use server event nmea0183out',
                'default': True,
            },
            'additionalEvents': {
                'type': 'array',
                'title': 'Additional events whose data should be sent',
                'items': {
                    'type': 'string',
                },
            },
            'lineDelimiter': {
                'type': 'string',
                'title': 'Line delimiter',
                'enum': [d.value for d in LineDelimiter],
                'default': LineDelimiter.NONE.value,
            },
        },
    }


def plugin_schema() -> dict:
    """JSON schema of the plugin options: a list of destinations."""
    return {
        'type': 'object',
        'properties': {
            'destinations': {
                'type': 'array',
                'title': 'Destinations',
                'items': destination_schema(),
            },
        },
    }
