"""dexy — multithreaded recursive file indexer."""
