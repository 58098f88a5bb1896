import logging
from dataclasses import dataclass
from dataclasses import field
from enum import Enum
from typing import TYPE_CHECKING
from typing import Callable

from vsaudit.rules.spec.result import Evaluation
from vsaudit.rules.spec.result import Outcome
from vsaudit.rules.spec.result import TargetObject

if TYPE_CHECKING:
    from vsaudit.intel.vsphere.client import VSphereSession

logger = logging.getLogger(__name__)


class Section(str, Enum):
    """Benchmark sections, in the order the benchmark numbers them."""

    INSTALL = "Install"
    """1. Installation and patching of ESXi hosts"""

    COMMUNICATION = "Communication"
    """2. Network services exposed by ESXi hosts"""

    LOGGING = "Logging"
    """3. Logging and core dumps"""

    ACCESS = "Access"
    """4. Local accounts and authentication"""

    CONSOLE = "Console"
    """5. DCUI, ESXi shell, SSH and lockdown mode"""

    STORAGE = "Storage"
    """6. iSCSI and SAN"""

    NETWORK = "Network"
    """7. Virtual switches and port groups"""

    VIRTUAL_MACHINE = "Virtual Machine"
    """8. Virtual machine configuration"""

    @property
    def number(self) -> int:
        return list(Section).index(self) + 1


class Level(str, Enum):
    """CIS profile levels."""

    L1 = "L1"
    """Level 1: practical hardening with little operational impact."""

    L2 = "L2"
    """Level 2: defense in depth, may reduce functionality."""


class Automation(str, Enum):
    """Whether a control can be evaluated without a human."""

    AUTOMATED = "AUTOMATED"
    """Automated: fetched from the inventory and classified."""

    MANUAL = "MANUAL"
    """Manual: the benchmark requires human review; always reported Unknown."""


Fetch = Callable[["VSphereSession"], list[TargetObject]]
Classify = Callable[[TargetObject], Evaluation]


@dataclass(frozen=True)
class Control:
    """A Control is one numbered benchmark requirement and how to evaluate it."""

    id: str
    """The benchmark section number, e.g. `2.1` or `8.2.1`."""
    name: str
    """The benchmark title of the control."""
    level: Level
    """The CIS profile level of the control."""
    section: Section
    """The benchmark section the control belongs to."""
    description: str
    """What is checked and, for manual controls, how an auditor verifies it."""
    automation: Automation = Automation.AUTOMATED
    """Manual controls issue no inventory query."""
    fetch: Fetch | None = field(default=None, compare=False)
    """Queries the inventory for the objects this control classifies."""
    classify: Classify | None = field(default=None, compare=False)
    """Total function mapping one object to an Evaluation."""
    empty_outcome: Outcome = Outcome.UNKNOWN
    """Outcome recorded when `fetch` yields nothing. PASS for "nothing found is compliant" controls."""
    references: tuple[str, ...] = ()
    """Links to external resources related to the control."""

    def __post_init__(self) -> None:
        if self.automation == Automation.AUTOMATED and (
            self.fetch is None or self.classify is None
        ):
            raise ValueError(f"Automated control {self.id} needs fetch and classify")

    @property
    def is_manual(self) -> bool:
        return self.automation == Automation.MANUAL

    @property
    def title(self) -> str:
        return f"{self.id} ({self.level.value}) {self.name}"


def manual_control(
    id: str,
    name: str,
    level: Level,
    section: Section,
    description: str,
    references: tuple[str, ...] = (),
) -> Control:
    """Build a control that the benchmark does not allow to be automated."""
    return Control(
        id=id,
        name=name,
        level=level,
        section=section,
        description=description,
        automation=Automation.MANUAL,
        references=references,
    )
