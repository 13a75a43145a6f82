"""Collection task engine.

A collection task pairs an archive path with a producer. The runner executes
tasks one by one against a shared zip archive; each task writes through a
lazy sink so an archive entry only appears once the producer emits data.
Producers signal expected absence with ``SkipCollection`` and anything else
with an ordinary exception; neither stops the run.
"""
