"""
QuickSight visual kinds, keyed by the property name used in definitions.
"""

from typing import Any, Dict, Optional

# Definition property name -> visual type, in detection order
VISUAL_TYPE_MAP = {
    'BarChartVisual': 'BarChart',
    'LineChartVisual': 'LineChart',
    'PieChartVisual': 'PieChart',
    'TableVisual': 'Table',
    'PivotTableVisual': 'PivotTable',
    'KPIVisual': 'KPI',
    'ScatterPlotVisual': 'ScatterPlot',
    'ComboChartVisual': 'ComboChart',
    'FilledMapVisual': 'FilledMap',
    'FunnelChartVisual': 'FunnelChart',
    'GaugeChartVisual': 'GaugeChart',
    'GeospatialMapVisual': 'GeospatialMap',
    'HeatMapVisual': 'HeatMap',
    'HistogramVisual': 'Histogram',
    'InsightVisual': 'Insight',
    'SankeyDiagramVisual': 'SankeyDiagram',
    'TreeMapVisual': 'TreeMap',
    'WaterfallVisual': 'Waterfall',
    'WordCloudVisual': 'WordCloud',
    'BoxPlotVisual': 'BoxPlot',
    'CustomContentVisual': 'CustomContent',
    'EmptyVisual': 'Empty',
    'LayerMapVisual': 'LayerMap',
    'PluginVisual': 'Plugin',
    'RadarChartVisual': 'RadarChart',
}

UNKNOWN_VISUAL_TYPE = 'Unknown'

_PROPERTY_BY_TYPE = {visual_type: prop for prop, visual_type in VISUAL_TYPE_MAP.items()}

CHART_VISUAL_TYPES = frozenset({
    'BarChart', 'LineChart', 'PieChart', 'ScatterPlot', 'ComboChart', 'FunnelChart',
    'GaugeChart', 'Histogram', 'BoxPlot', 'Waterfall', 'RadarChart',
})
TABLE_VISUAL_TYPES = frozenset({'Table', 'PivotTable'})
MAP_VISUAL_TYPES = frozenset({'FilledMap', 'GeospatialMap', 'HeatMap', 'LayerMap'})
ADVANCED_VISUAL_TYPES = frozenset({'SankeyDiagram', 'TreeMap', 'WordCloud', 'Insight'})
SPECIAL_VISUAL_TYPES = frozenset({'KPI', 'CustomContent', 'Empty', 'Plugin'})


def get_visual_type(visual: Dict[str, Any]) -> str:
    """Return the type of the first visual property present, or ``Unknown``."""
    if not isinstance(visual, dict):
        return UNKNOWN_VISUAL_TYPE
    for prop, visual_type in VISUAL_TYPE_MAP.items():
        if visual.get(prop):
            return visual_type
    return UNKNOWN_VISUAL_TYPE


def get_visual_property_name(visual_type: str) -> Optional[str]:
    return _PROPERTY_BY_TYPE.get(visual_type)


def get_visual_data(visual: Dict[str, Any], visual_type: Optional[str] = None) -> Dict[str, Any]:
    """
    Return the inner visual object, e.g. ``visual['BarChartVisual']``.

    Falls back to the wrapper itself for unknown visual kinds.
    """
    visual_type = visual_type or get_visual_type(visual)
    prop = get_visual_property_name(visual_type)
    if prop and isinstance(visual.get(prop), dict):
        return visual[prop]
    return visual if isinstance(visual, dict) else {}


def is_chart_visual(visual_type: str) -> bool:
    return visual_type in CHART_VISUAL_TYPES


def is_table_visual(visual_type: str) -> bool:
    return visual_type in TABLE_VISUAL_TYPES


def is_map_visual(visual_type: str) -> bool:
    return visual_type in MAP_VISUAL_TYPES


def is_advanced_visual(visual_type: str) -> bool:
    return visual_type in ADVANCED_VISUAL_TYPES


def is_special_visual(visual_type: str) -> bool:
    return visual_type in SPECIAL_VISUAL_TYPES


def is_visual_type(value: str) -> bool:
    return value in _PROPERTY_BY_TYPE or value == UNKNOWN_VISUAL_TYPE
