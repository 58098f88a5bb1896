"""
vsaudit: audit VMware vSphere hosts and virtual machines against the CIS
VMware ESXi benchmark.

    vsaudit.intel.vsphere   live inventory read through pyVmomi
    vsaudit.rules           control catalogue, runner and CLI
"""
