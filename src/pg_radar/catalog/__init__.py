"""Static catalog of what to collect: system commands, files and SQL queries."""
