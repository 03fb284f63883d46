"""Feature modules of edu-media-commons.

- permissions/: permission catalog and role defaults
- users/: profiles, roles and user groups
- content/: content items and the editorial workflow
- versions/: append-only version history and revert
- access/: access grants and the visibility resolver
- bundles/: ordered content collections
- commerce/: pricing and orders
- sharing/: invite codes, client invites and share links
- notifications/: email and SMS dispatch
- purchase_requests/: approval requests before buying
- recommendations/: content recommended to clients and parents
- analytics/: content view tracking and reports
"""
