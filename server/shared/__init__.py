"""Records and helpers shared by the API, storage backends and scripts."""
