"""Settings, logging and on-disk stores."""
