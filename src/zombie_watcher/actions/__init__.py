"""Response actions taken against zombie processes."""
