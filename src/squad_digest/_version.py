"""Version information for squad-digest."""

__version__ = "0.4.0"
