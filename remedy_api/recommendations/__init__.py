"""
Remedy recommendation service.

Responsibilities:
- Parse and validate the symptom query sent by the client.
- Turn the model's structured reply into validated remedy recommendations.
- Attach a marketplace purchase link to every remedy.
- Run the remedy engine and the store locator side by side and merge
  their results into one response payload.
"""
