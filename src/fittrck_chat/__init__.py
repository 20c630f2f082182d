"""FitTrck chat core: request pipeline, conversation history and HTTP surface."""
