"""WizFlow portal: HTTP surface for flow sessions."""
