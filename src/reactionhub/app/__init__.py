"""Host lifecycle, reload pipeline and event producers."""
