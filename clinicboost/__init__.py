"""ClinicBoost in-process memoization cache."""
