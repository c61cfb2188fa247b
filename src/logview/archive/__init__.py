"""ZIP archive validation and safe extraction."""
