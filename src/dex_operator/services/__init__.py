"""Service clients used by the Dex Operator."""
