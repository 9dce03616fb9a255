"""Infrastructure layer: static config, balance config, logging, infrastructure errors."""
