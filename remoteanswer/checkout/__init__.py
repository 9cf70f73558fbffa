"""
Checkout simulation for RemoteAnswer.

- Session: Payment state machine producing purchase records
- Timer: Cancellable repeating timers driving payment progress
"""
