"""Price-driven EV charge scheduler."""
