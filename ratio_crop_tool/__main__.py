from ratio_crop_tool.app import main

main()
