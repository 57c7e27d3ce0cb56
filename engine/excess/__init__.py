from engine.excess.calculator import ExcessSeries, apply_excess, calculate_excess, cumulative_sum_from

__all__ = ["ExcessSeries", "apply_excess", "calculate_excess", "cumulative_sum_from"]
