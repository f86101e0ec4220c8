"""Panel configuration: profiles, constants, and the on-disk manager."""
