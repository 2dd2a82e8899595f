"""TempDrop test suite."""
