"""Infrastructure: local JSON storage and the remote spreadsheet mirror."""
