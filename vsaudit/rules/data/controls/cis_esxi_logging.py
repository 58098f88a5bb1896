"""
CIS VMware ESXi Benchmark Section 3: Logging

Core dumps, persistent logs and remote syslog of ESXi hosts.
"""
from vsaudit.rules.data.fetchers import hosts
from vsaudit.rules.data.predicates import check
from vsaudit.rules.data.predicates import is_set
from vsaudit.rules.spec.model import Control
from vsaudit.rules.spec.model import Level
from vsaudit.rules.spec.model import Section
from vsaudit.rules.spec.model import manual_control

# -----------------------------------------------------------------------------
# CIS 3.1: Ensure a centralized location is configured to collect ESXi host core dumps
# -----------------------------------------------------------------------------
cis_3_1_core_dump_collector = manual_control(
    id="3.1",
    name="Ensure a centralized location is configured to collect ESXi host core dumps",
    level=Level.L1,
    section=Section.LOGGING,
    description=(
        "Run `esxcli system coredump network get` on each host and confirm a "
        "network dump collector is enabled and reachable."
    ),
)


# -----------------------------------------------------------------------------
# CIS 3.2: Ensure persistent logging is configured for all ESXi hosts
# -----------------------------------------------------------------------------
cis_3_2_persistent_logging = Control(
    id="3.2",
    name="Ensure persistent logging is configured for all ESXi hosts",
    level=Level.L1,
    section=Section.LOGGING,
    description="Syslog.global.logDir must point to a persistent datastore location.",
    fetch=hosts("advanced:Syslog.global.logDir"),
    classify=check("advanced:Syslog.global.logDir", is_set()),
)


# -----------------------------------------------------------------------------
# CIS 3.3: Ensure remote logging is configured for ESXi hosts
# -----------------------------------------------------------------------------
cis_3_3_remote_logging = Control(
    id="3.3",
    name="Ensure remote logging is configured for ESXi hosts",
    level=Level.L1,
    section=Section.LOGGING,
    description="Syslog.global.logHost must name at least one remote syslog target.",
    fetch=hosts("advanced:Syslog.global.logHost"),
    classify=check("advanced:Syslog.global.logHost", is_set()),
)


LOGGING_CONTROLS = (
    cis_3_1_core_dump_collector,
    cis_3_2_persistent_logging,
    cis_3_3_remote_logging,
)
