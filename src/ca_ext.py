import knime.extension as knext

# NOTE: Categories currently don't work in modern UI.
# This is a bug that needs to be fixed in the KNIME Analytics Platform.
main_category = knext.category(
    path="/community",
    level_id="ca_recompute",
    name="Correspondence Analysis",
    description="Nodes for computing correspondence analysis results and completing stored ones",
    icon="icons/icon.png",
)

from nodes import correspondence_analysis  # noqa: E402,F401
from nodes import ca_recompute  # noqa: E402,F401
