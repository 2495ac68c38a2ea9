"""Entity repositories, one per synchronized collection."""
