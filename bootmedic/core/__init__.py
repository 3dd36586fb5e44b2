"""Diagnosis core: probes, verdict, ranking, and the repair-mode gate."""
