"""High level code for driving the nanopore methylation pipeline.

This structures processing steps into the following modules:

  - discover.py: Find sample directories in the input run directories.
  - sample.py: Identify library, batch and sample names from a path.
  - stages.py: Ordered steps with completion checks for resuming runs.
    - merge.py: Merge raw BAM files for a sample.
  - summary.py: Outcomes of each sample and the final run summary.
  - main.py: Run all samples through all steps.
"""
