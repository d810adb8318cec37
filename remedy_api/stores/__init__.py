"""
Nearby store lookup.

Responsibilities:
- Resolve a free-text location to coordinates (Google Geocoding).
- Search for homeopathic stores around it (Google Places Text Search).
- Enrich each hit with phone/website details and distance from the user.
- Degrade to fewer or no stores whenever the provider misbehaves.
"""
