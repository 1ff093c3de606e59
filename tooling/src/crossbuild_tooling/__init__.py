"""crossbuild_tooling - run a native build script per target architecture in dockcross-style containers or on the host."""
