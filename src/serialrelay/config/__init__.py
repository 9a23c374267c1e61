"""
Loading of ConfigObj configuration files, validated against a schema and applied to
module-level settings.
"""
