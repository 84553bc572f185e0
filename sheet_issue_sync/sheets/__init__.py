"""Google Sheets access: A1 addressing and the values API client."""
