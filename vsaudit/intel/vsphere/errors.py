class ConfigUnavailable(LookupError):
    """
    The configuration of one inventory object cannot be read, e.g. a host that
    is disconnected from vCenter or an orphaned VM. Only that object is
    affected; the rest of the inventory is still audited.
    """
