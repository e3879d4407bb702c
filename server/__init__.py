"""HTTP front end for the grammar diagram compiler."""
