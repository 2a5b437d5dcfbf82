"""Console and spreadsheet output for estimated commit times."""
