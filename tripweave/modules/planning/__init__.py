"""modules/planning — fairness, time budgets, route search and linear itineraries."""
