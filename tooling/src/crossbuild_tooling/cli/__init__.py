"""`crossbuild` command line."""
