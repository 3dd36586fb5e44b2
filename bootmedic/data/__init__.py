"""Static rule tables shipped with the package."""
