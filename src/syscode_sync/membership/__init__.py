"""SysCode Group Membership Module.

Reconciles custom group membership in the asset-management API against a
CSV inventory:
- Read device rows (name, FQDN, SysCode list)
- Ensure one group per SysCode, creating and verifying missing groups
- Resolve devices to asset ids by name, disambiguated by FQDN
- Write each group's resolved membership

Architecture: Clean Architecture with Hexagonal (Ports & Adapters)
"""
