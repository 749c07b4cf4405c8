"""Testing helpers – in-memory doubles for ports."""
