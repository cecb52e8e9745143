"""
Shared, cross-cutting code for the API.

`core/` should contain small building blocks that feature packages use
(DB wiring, settings, logging, the failure taxonomy, the song-info client).
Keep feature-specific SQL and request handling in the corresponding feature
package (e.g. `songs/`).
"""
