"""Domain layer: schema entities and the services that interpret them."""
