"""Reports package: session report assembly and rendering."""
