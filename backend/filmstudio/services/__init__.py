"""Domain services: AI writers, generators, pricing, timeline and exports."""
