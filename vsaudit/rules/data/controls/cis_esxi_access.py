"""
CIS VMware ESXi Benchmark Section 4: Access

Local accounts, password policy and directory integration of ESXi hosts.
"""
from vsaudit.rules.data.fetchers import hosts
from vsaudit.rules.data.predicates import check
from vsaudit.rules.data.predicates import equals
from vsaudit.rules.data.predicates import is_set
from vsaudit.rules.spec.model import Control
from vsaudit.rules.spec.model import Level
from vsaudit.rules.spec.model import Section
from vsaudit.rules.spec.model import manual_control

PASSWORD_QUALITY_CONTROL = "retry=3 min=disabled,disabled,disabled,disabled,15"
ACCOUNT_LOCK_FAILURES = 5
ACCOUNT_UNLOCK_TIME = 900
PASSWORD_HISTORY = 5

# -----------------------------------------------------------------------------
# CIS 4.1: Ensure a non-root user account exists for local admin access
# -----------------------------------------------------------------------------
cis_4_1_non_root_admin = manual_control(
    id="4.1",
    name="Ensure a non-root user account exists for local admin access",
    level=Level.L1,
    section=Section.ACCESS,
    description=(
        "Confirm that each host has a named local administrator account so that "
        "the root account is not used for day-to-day administration."
    ),
)


# -----------------------------------------------------------------------------
# CIS 4.2: Ensure passwords are required to be complex
# -----------------------------------------------------------------------------
cis_4_2_password_complexity = Control(
    id="4.2",
    name="Ensure passwords are required to be complex",
    level=Level.L1,
    section=Section.ACCESS,
    description=f"Security.PasswordQualityControl must be '{PASSWORD_QUALITY_CONTROL}'.",
    fetch=hosts("advanced:Security.PasswordQualityControl"),
    classify=check(
        "advanced:Security.PasswordQualityControl", equals(PASSWORD_QUALITY_CONTROL),
    ),
)


# -----------------------------------------------------------------------------
# CIS 4.3: Ensure the maximum failed login attempts is set to 5
# -----------------------------------------------------------------------------
cis_4_3_account_lock_failures = Control(
    id="4.3",
    name="Ensure the maximum failed login attempts is set to 5",
    level=Level.L1,
    section=Section.ACCESS,
    description=f"Security.AccountLockFailures must be {ACCOUNT_LOCK_FAILURES}.",
    fetch=hosts("advanced:Security.AccountLockFailures"),
    classify=check("advanced:Security.AccountLockFailures", equals(ACCOUNT_LOCK_FAILURES)),
)


# -----------------------------------------------------------------------------
# CIS 4.4: Ensure account lockout is set to 15 minutes
# -----------------------------------------------------------------------------
cis_4_4_account_unlock_time = Control(
    id="4.4",
    name="Ensure account lockout is set to 15 minutes",
    level=Level.L1,
    section=Section.ACCESS,
    description=f"Security.AccountUnlockTime must be {ACCOUNT_UNLOCK_TIME} seconds.",
    fetch=hosts("advanced:Security.AccountUnlockTime"),
    classify=check("advanced:Security.AccountUnlockTime", equals(ACCOUNT_UNLOCK_TIME)),
)


# -----------------------------------------------------------------------------
# CIS 4.5: Ensure previous 5 passwords are prohibited
# -----------------------------------------------------------------------------
cis_4_5_password_history = Control(
    id="4.5",
    name="Ensure previous 5 passwords are prohibited",
    level=Level.L1,
    section=Section.ACCESS,
    description=f"Security.PasswordHistory must be {PASSWORD_HISTORY}.",
    fetch=hosts("advanced:Security.PasswordHistory"),
    classify=check("advanced:Security.PasswordHistory", equals(PASSWORD_HISTORY)),
)


# -----------------------------------------------------------------------------
# CIS 4.6: Ensure Active Directory is used for local user authentication
# -----------------------------------------------------------------------------
cis_4_6_active_directory = Control(
    id="4.6",
    name="Ensure Active Directory is used for local user authentication",
    level=Level.L1,
    section=Section.ACCESS,
    description="Every host must be joined to an Active Directory domain.",
    fetch=hosts("ad_domain"),
    classify=check("ad_domain", is_set(), label="Joined domain"),
)


# -----------------------------------------------------------------------------
# CIS 4.7: Ensure only authorized users and groups belong to the esxAdminsGroup group
# -----------------------------------------------------------------------------
cis_4_7_esx_admins_group = manual_control(
    id="4.7",
    name="Ensure only authorized users and groups belong to the esxAdminsGroup group",
    level=Level.L1,
    section=Section.ACCESS,
    description=(
        "Look up Config.HostAgent.plugins.hostsvc.esxAdminsGroup and review the "
        "membership of that group in Active Directory."
    ),
)


# -----------------------------------------------------------------------------
# CIS 4.8: Ensure the Exception Users list is properly configured
# -----------------------------------------------------------------------------
cis_4_8_exception_users = manual_control(
    id="4.8",
    name="Ensure the Exception Users list is properly configured",
    level=Level.L1,
    section=Section.ACCESS,
    description=(
        "Review the lockdown mode exception users of each host; only service "
        "accounts that must bypass lockdown mode may be listed."
    ),
)


ACCESS_CONTROLS = (
    cis_4_1_non_root_admin,
    cis_4_2_password_complexity,
    cis_4_3_account_lock_failures,
    cis_4_4_account_unlock_time,
    cis_4_5_password_history,
    cis_4_6_active_directory,
    cis_4_7_esx_admins_group,
    cis_4_8_exception_users,
)
