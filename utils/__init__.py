"""Security primitives and the Flask identity decorators."""
