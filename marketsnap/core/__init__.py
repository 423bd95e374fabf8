"""marketsnap core: providers, resolvers, aggregation and ambient services."""
