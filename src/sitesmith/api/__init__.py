"""REST API for Sitesmith."""
