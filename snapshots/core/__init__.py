"""Settings, logging and error reporting shared by every command."""
