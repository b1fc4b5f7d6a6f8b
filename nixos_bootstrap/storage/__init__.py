"""Disk-level steps: partitioning, formatting, subvolumes and mounts.

Every external command in this package goes through storage.commands, and
every failure is raised as a storage.exceptions.BootstrapError subclass.
"""
