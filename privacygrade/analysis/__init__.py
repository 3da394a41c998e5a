"""Detection, aggregation and scoring of page tracking behaviour."""
