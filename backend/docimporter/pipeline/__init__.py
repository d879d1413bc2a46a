"""
Pipeline engine — handler roles, conditional flows, per-phase context,
dispatch, events and errors.

Import from the submodules (``docimporter.pipeline.handler``,
``docimporter.pipeline.flow``, ...) or from the top-level ``docimporter``
package.
"""
