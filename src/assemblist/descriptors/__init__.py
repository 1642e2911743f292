"""Built-in assembly descriptors, addressable by reference id (``bin``, ``src``, ...)."""
