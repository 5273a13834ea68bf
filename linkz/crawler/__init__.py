"""linkz.crawler: fetching documents and turning them into link sets."""
