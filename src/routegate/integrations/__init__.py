"""Framework integrations. Import the submodule for the framework in use."""
