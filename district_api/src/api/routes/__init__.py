"""
API route modules.

This package contains subrouters for:
- Requests: data requests, visible-request listing, assignees
- Visit Sessions: GPS-tracked visit sessions
- Activities: visit submissions per visit type
- Location Tracking: GPS samples and session-to-visit linking
- Organisation / Users: district, cluster, school and staff administration
- Reports: exportable school reports

Routers are included from src.api.main (under the /api/v1 prefix).
"""
