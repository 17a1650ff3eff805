from devcli.providers.hosts.base import AddResult, CheckResult, HostEntry, HostsProvider, RemoveResult
from devcli.providers.hosts.etc_hosts import EtcHostsProvider

__all__ = ["AddResult", "CheckResult", "EtcHostsProvider", "HostEntry", "HostsProvider", "RemoveResult"]
