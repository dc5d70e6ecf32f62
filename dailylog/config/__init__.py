"""Configuration for Daily Log: environment settings and fixed vocabularies."""
