"""traefik-aggregator: one Traefik dynamic configuration from many Traefik instances."""

__version__ = "0.1.0"
