"""Read-through caching query API over the Event Data archive."""
