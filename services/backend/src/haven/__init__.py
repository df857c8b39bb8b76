"""Haven - bank connections and account sync for the personal finance workspace."""
