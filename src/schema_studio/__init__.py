"""Schema Studio: translate database schemas between source formats."""
