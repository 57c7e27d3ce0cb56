from engine.alignment.aligner import align_dataset, align_entry, leading_unmatched, prefill

__all__ = ["align_dataset", "align_entry", "leading_unmatched", "prefill"]
