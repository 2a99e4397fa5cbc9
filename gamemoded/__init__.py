"""Building blocks for a daemon that tunes a Linux system while games run.

It covers settings parsing, CPU core selection, sysfs state readers and helper
process execution.
"""

__version__ = "1.8.2"