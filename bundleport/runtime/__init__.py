"""Import run engine: context, capabilities, importer and reporting."""
