"""Captured ping output used across tests."""

LINUX_UP_OUTPUT = """\
PING mars (10.0.0.1) 56(84) bytes of data.

--- mars ping statistics ---
1 packets transmitted, 1 received, 0% packet loss, time 0ms
rtt min/avg/max/mdev = 10.100/12.300/14.500/1.000 ms
"""

LINUX_DOWN_OUTPUT = """\
PING phobos (10.0.0.2) 56(84) bytes of data.

--- phobos ping statistics ---
1 packets transmitted, 0 received, 100% packet loss, time 0ms
"""

LINUX_UNKNOWN_OUTPUT = "ping: nosuch.invalid: Name or service not known\n"

BUSYBOX_UP_OUTPUT = """\
PING mars (10.0.0.1): 56 data bytes

--- mars ping statistics ---
3 packets transmitted, 1 packets received, 66% packet loss
round-trip min/avg/max = 0.100/0.250/0.400 ms
"""

BUSYBOX_UNKNOWN_OUTPUT = "ping: bad address 'nosuch'\n"
