"""Match reconciliation and live-status engine."""
